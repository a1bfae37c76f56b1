def validate_positive_integer(type_: object, value: int) -> None:
    """Validate that value is strictly positive."""
    if value <= 0:
        raise ValueError("Value must be a positive integer")


def validate_block_size(type_: object, size: int) -> None:
    """Validate a read block size: positive and a multiple of 8 bytes."""
    validate_positive_integer(type_, size)
    if size % 8 != 0:
        raise ValueError("Block size must be a multiple of 8 bytes")
