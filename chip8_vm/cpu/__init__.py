# CPU core: register file, opcode decoder, platform variants
