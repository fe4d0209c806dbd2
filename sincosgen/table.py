import logging

import numpy as np
from nmigen import Memory

from sincosgen.config import SinCosConfig
from sincosgen.util import round_half_away, pack_mem, unpack_mem

logger = logging.getLogger(__name__)

def generate_table(data_width: int, table_address_width: int):
    """
    Returns (cos, sin) arrays with 2**table_address_width samples of the first
    quadrant, theta = i*pi/(2*2**table_address_width), scaled to the largest
    positive value of a signed data_width word.
    """
    amplitude = 2**(data_width - 1) - 1
    theta = (np.pi/2)*np.arange(2**table_address_width)/2**table_address_width
    return (round_half_away(amplitude*np.cos(theta)),
            round_half_away(amplitude*np.sin(theta)))

class SinCosTable(object):
    """First quadrant (cos, sin) ROM, generated once per configuration"""
    def __init__(self, config: SinCosConfig):
        self.config = config
        self.cos, self.sin = generate_table(config.data_width, config.table_address_width)
        self.cos.setflags(write=False)
        self.sin.setflags(write=False)

        self.words = pack_mem(self.cos, self.sin, config.data_width)
        self.depth = len(self.words)
        self.width = 2*config.data_width

        logger.info("SinCos table {} deep, {} bit wide, ram_style={}".format(
            self.depth, self.width, config.ram_style))

    def memory(self):
        return Memory(width=self.width, depth=self.depth, init=self.words,
                      attrs={"ram_style": self.config.ram_style})

    def __len__(self):
        return self.depth

    def __getitem__(self, index):
        return int(self.cos[index]), int(self.sin[index])

def test_table_boundaries():
    for data_width, taw in [(8, 4), (16, 9), (19, 6), (32, 9)]:
        cos, sin = generate_table(data_width, taw)
        assert len(cos) == len(sin) == 2**taw
        assert cos[0] == 2**(data_width - 1) - 1
        assert sin[0] == 0
        # Last sample sits one step short of pi/2
        assert sin[-1] < 2**(data_width - 1) - 1
        assert np.all(cos >= 0) and np.all(sin >= 0)

def test_table_accuracy():
    cos, sin = generate_table(16, 8)
    theta = (np.pi/2)*np.arange(256)/256
    assert np.abs(cos - 32767*np.cos(theta)).max() <= 0.5
    assert np.abs(sin - 32767*np.sin(theta)).max() <= 0.5

def test_table_is_deterministic():
    a = SinCosTable(SinCosConfig(24, 14, 10))
    b = SinCosTable(SinCosConfig(24, 14, 10))
    assert a.words == b.words
    assert np.array_equal(a.cos, b.cos) and np.array_equal(a.sin, b.sin)

def test_table_words_roundtrip():
    table = SinCosTable(SinCosConfig(12, 10, 5))
    cos, sin = unpack_mem(table.words, 12)
    assert np.array_equal(cos, table.cos)
    assert np.array_equal(sin, table.sin)
    assert table[0] == (2047, 0)

def test_table_memory():
    table = SinCosTable(SinCosConfig(16, 12, 6, variant="dsp"))
    mem = table.memory()
    assert mem.depth == 64
    assert mem.width == 32
    assert mem.attrs["ram_style"] == "block"
