ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Error string the EVM reports for a REVERT opcode
EXECUTION_REVERTED = "execution reverted"

# bytes4(keccak256("Error(string)"))
REVERT_ERROR_SELECTOR = bytes.fromhex("08c379a0")
# bytes4(keccak256("Panic(uint256)"))
REVERT_PANIC_SELECTOR = bytes.fromhex("4e487b71")

# Solidity panic codes, see https://docs.soliditylang.org/en/latest/control-structures.html#panic-via-assert-and-error-via-require
PANIC_REASONS = {
    0x00: "generic panic",
    0x01: "assert(false)",
    0x11: "arithmetic underflow or overflow",
    0x12: "division or modulo by zero",
    0x21: "enum overflow",
    0x22: "invalid encoded storage byte array accessed",
    0x31: "out-of-bounds array access; popping on an empty array",
    0x32: "out-of-bounds access of an array or bytesN",
    0x41: "out of memory",
    0x51: "uninitialized function",
}
