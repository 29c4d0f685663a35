from enum import Enum

import numpy as np

MIN_RAILS = 2


class InvalidRailCount(ValueError):
    """Raised when a rail count below MIN_RAILS is given to the cipher."""

    def __init__(self, message="Number of rails must be at least 2."):
        super().__init__(message)


def validate_rails(rails):
    # bool is an int subclass, but True/False are not rail counts
    if isinstance(rails, bool) or not isinstance(rails, (int, np.integer)):
        raise InvalidRailCount(f"Number of rails must be an integer, got {rails!r}.")
    if rails < MIN_RAILS:
        raise InvalidRailCount()
    return int(rails)


# ==================== Zigzag ====================

def rail_pattern(length, rails):
    """
    Rail index for each text position 0..length-1.
    Starts on rail 0 going down and bounces off the top and bottom rails:
    0, 1, ..., rails-1, rails-2, ..., 1, 0, 1, ...
    """
    pattern = []
    row = 0
    down = True
    for _ in range(length):
        pattern.append(row)
        if row == 0:
            down = True
        elif row == rails - 1:
            down = False
        row += 1 if down else -1
    return pattern


def rail_lengths(length, rails):
    """How many characters of a `length` long text land on each rail."""
    pattern = rail_pattern(length, rails)
    return np.bincount(np.asarray(pattern, dtype=int), minlength=rails).tolist()


# ==================== Cipher ====================

def encrypt(text, rails):
    rails = validate_rails(rails)
    fence = [[] for _ in range(rails)]
    for ch, r in zip(text, rail_pattern(len(text), rails)):
        fence[r].append(ch)
    return ''.join(''.join(row) for row in fence)


def decrypt(cipher, rails):
    rails = validate_rails(rails)
    pattern = rail_pattern(len(cipher), rails)

    # Slice ciphertext into one contiguous run per rail
    ends = np.cumsum(rail_lengths(len(cipher), rails)).tolist()
    starts = [0] + ends[:-1]
    runs = [cipher[s:e] for s, e in zip(starts, ends)]

    # Walk the zigzag again, taking the next unused char of each rail
    result = []
    rail_positions = [0] * rails
    for r in pattern:
        result.append(runs[r][rail_positions[r]])
        rail_positions[r] += 1
    return ''.join(result)


class Operation(Enum):
    """The two cipher directions, valued by the label the history store keeps."""

    ENCRYPT = "Encrypt"
    DECRYPT = "Decrypt"

    def apply(self, text, rails):
        if self is Operation.ENCRYPT:
            return encrypt(text, rails)
        return decrypt(text, rails)

    @classmethod
    def parse(cls, label):
        if isinstance(label, cls):
            return label
        for op in cls:
            if str(label).strip().lower() == op.value.lower():
                return op
        raise ValueError(f"Unknown operation: {label!r}")


def run(operation, text, rails, recorder=None):
    """
    Apply `operation` and hand the outcome to `recorder` if one is given.
    The recorder is only called once the cipher succeeded, with
    (operation, original text, processed text, rails).
    """
    operation = Operation.parse(operation)
    rails = validate_rails(rails)
    processed = operation.apply(text, rails)
    if recorder is not None:
        recorder(operation, text, processed, rails)
    return processed
