"""Small string, hex, digit and checksum helpers for byte-oriented protocols."""

from __future__ import annotations

from typing import Iterable, Union

_U32 = 0xFFFFFFFF

BytesLike = Union[bytes, bytearray, memoryview]
TextLike = Union[str, bytes, bytearray]


def _as_bytes(value: TextLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _lower(code: int) -> int:
    if ord("A") <= code <= ord("Z"):
        return code - ord("A") + ord("a")
    return code


def align_down(x: int, align: int) -> int:
    """Round ``x`` down to a multiple of ``align`` (a power of two)."""
    return x & ~(align - 1)


def align_up(x: int, align: int) -> int:
    """Round ``x`` up to a multiple of ``align`` (a power of two)."""
    return (x + (align - 1)) & ~(align - 1)


def strncasecmp(s1: TextLike, s2: TextLike, n: int) -> int:
    """Compare at most ``n`` characters of two strings, ignoring ASCII case.

    Returns the difference of the first differing lower-cased characters.
    When the end of ``s1`` is reached before ``n`` characters matched the
    result is -1, and when the end of ``s2`` is reached first it is 1.
    """
    # A NUL terminator is appended so the walk behaves like a C string scan.
    a = _as_bytes(s1) + b"\0"
    b = _as_bytes(s2) + b"\0"
    count = 0
    pos = 0
    while True:
        result = _lower(a[pos]) - _lower(b[pos])
        if result != 0:
            return result
        count += 1
        if count >= n:
            return result
        if a[pos] == 0:
            return -1
        if b[pos] == 0:
            return 1
        pos += 1


def strcmp(src: TextLike, dst: TextLike) -> int:
    """Compare two strings byte by byte, returning -1, 0 or 1."""
    a = _as_bytes(src) + b"\0"
    b = _as_bytes(dst) + b"\0"
    pos = 0
    while True:
        diff = a[pos] - b[pos]
        if diff != 0 or b[pos] == 0:
            break
        pos += 1
    if diff < 0:
        return -1
    if diff > 0:
        return 1
    return 0


def asc2hex(asccode: str) -> int:
    """Convert one hex digit character to its value; anything else gives 0."""
    if "0" <= asccode <= "9":
        return ord(asccode) - ord("0")
    if "a" <= asccode <= "f":
        return ord(asccode) - ord("a") + 10
    if "A" <= asccode <= "F":
        return ord(asccode) - ord("A") + 10
    return 0


def ascs2hex(ascs: TextLike) -> bytes:
    """Convert pairs of hex digit characters to bytes.

    A trailing odd character is ignored and invalid digits count as 0.
    """
    text = ascs if isinstance(ascs, str) else bytes(ascs).decode("latin-1")
    usable = len(text) - len(text) % 2
    return bytes(
        (asc2hex(text[i]) << 4) + asc2hex(text[i + 1]) for i in range(0, usable, 2)
    )


def hex2str(data: BytesLike) -> str:
    """Render bytes as upper-case hex digits, two per byte."""
    digits = "0123456789ABCDEF"
    return "".join(digits[b >> 4] + digits[b & 0x0F] for b in bytes(data))


def str2num(text: str) -> int:
    """Parse a string of decimal digits into an unsigned 32-bit number.

    Raises ValueError if any character is not a decimal digit.
    """
    value = 0
    for ch in text:
        if not "0" <= ch <= "9":
            raise ValueError(f"not a decimal digit: {ch!r}")
        value = (value * 10 + (ord(ch) - ord("0"))) & _U32
    return value


def int2int_array(num: int, length: int) -> list[int]:
    """Split a 32-bit number into its decimal digits, most significant first.

    Raises ValueError if the number needs more than ``length`` digits.
    Zero yields an empty list.
    """
    num &= _U32
    needed = len(str(num))
    if length < needed:
        raise ValueError(f"{num} needs {needed} digits, only {length} allowed")
    digits: list[int] = []
    while num:
        num, digit = divmod(num, 10)
        digits.append(digit)
    digits.reverse()
    return digits


def int_array2int(digits: Iterable[int], index: int, length: int) -> int:
    """Join ``length`` decimal digits starting at ``index`` into a number.

    Raises ValueError if ``index`` is not below ``length`` or the digits
    run short.
    """
    if index >= length:
        raise ValueError("index must be smaller than length")
    seq = list(digits)
    window = seq[index:index + length]
    if len(window) != length:
        raise ValueError("not enough digits")
    num = 0
    for digit in window:
        num = (num * 10 + digit) & _U32
    return num


def data_reverse(data: BytesLike) -> bytes:
    """Return the bytes in reverse order."""
    return bytes(data)[::-1]


def byte_sort(data: BytesLike, ascending: bool = True) -> bytes:
    """Return the bytes sorted by value, ascending or descending."""
    return bytes(sorted(bytes(data), reverse=not ascending))


def find_char_with_reverse_idx(text: str, index: int, ch: str) -> int | None:
    """Search ``text`` backwards for ``ch``, skipping the last ``index`` characters.

    Returns the position found, or None if ``ch`` does not occur there.
    Raises ValueError if ``index`` is outside the string.
    """
    if index < 0 or index >= len(text):
        raise ValueError("reverse index out of range")
    pos = text.rfind(ch, 0, len(text) - index)
    return None if pos < 0 else pos


def bit1_count(num: int) -> int:
    """Count the set bits of a 32-bit number."""
    num &= _U32
    count = 0
    while num:
        num &= num - 1
        count += 1
    return count


def leading_zeros_count(num: int) -> int:
    """Count the leading zero bits of a 32-bit number."""
    return 32 - (num & _U32).bit_length()


def check_sum8(data: BytesLike) -> int:
    """8-bit additive checksum."""
    return sum(bytes(data)) & 0xFF


def check_sum16(data: BytesLike) -> int:
    """16-bit additive checksum."""
    return sum(bytes(data)) & 0xFFFF