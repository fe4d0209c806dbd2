import numpy as np

def round_half_away(a):
    """Round to nearest, ties away from zero (like a real to integer conversion
       that truncates x + 0.5*sign(x))"""
    a = np.asarray(a, dtype=np.float64)
    return np.trunc(a + np.copysign(0.5, a)).astype(np.int64)

def wrap(value, width: int):
    """Reinterpret an integer as a two's complement number of the given width"""
    mask = (1 << width) - 1
    value = int(value) & mask
    if value >> (width - 1):
        return value - (1 << width)
    return value

def pack_mem(lows, highs, width: int):
    """Pack pairs of signed values into memory words, low half first"""
    mask = (1 << width) - 1
    out = []
    for low, high in zip(lows, highs):
        out.append((int(low) & mask) | ((int(high) & mask) << width))
    return out

def unpack_mem(words, width: int):
    lows = []
    highs = []
    for word in words:
        lows.append(wrap(word, width))
        highs.append(wrap(word >> width, width))
    return np.array(lows, dtype=np.int64), np.array(highs, dtype=np.int64)

def test_round_half_away():
    assert list(round_half_away([0.5, 1.5, 2.5, -0.5, -2.5, 0.49, -0.51])) == [1, 2, 3, -1, -3, 0, -1]

def test_wrap():
    assert wrap(0x7F, 8) == 127
    assert wrap(0x80, 8) == -128
    assert wrap(-129, 8) == 127
    assert wrap(2**32 - 1, 32) == -1

def test_pack_mem():
    words = pack_mem([1, -1, -128], [-2, 5, 127], 8)
    assert words == [0xFE01, 0x05FF, 0x7F80]
    lows, highs = unpack_mem(words, 8)
    assert list(lows) == [1, -1, -128]
    assert list(highs) == [-2, 5, 127]
