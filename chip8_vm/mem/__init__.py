# Memory image and built-in font
