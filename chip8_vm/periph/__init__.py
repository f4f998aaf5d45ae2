# Peripherals: framebuffer, delay/sound timers, hex keypad
