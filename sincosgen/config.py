from collections import namedtuple

VARIANTS = ("generic", "dsp")

# Memory ram_style per variant; the numbers produced never depend on it
RAM_STYLES = {
    "generic": "distributed",
    "dsp": "block",
}

_Config = namedtuple("_Config", ["data_width", "phase_width", "table_address_width", "variant"])

class SinCosConfig(_Config):
    """
    Immutable configuration of a sin/cos generator.

    data_width is the signed output word width, phase_width the width of the
    phase accumulator and table_address_width the log2 of the number of
    (cos, sin) samples covering the first quadrant.
    """
    __slots__ = ()

    def __new__(cls, data_width: int, phase_width: int, table_address_width: int, variant: str="generic"):
        if data_width < 2:
            raise ValueError("data_width must be at least 2, got {}".format(data_width))
        if phase_width < 3:
            raise ValueError("phase_width must be at least 3, got {}".format(phase_width))
        if table_address_width < 1:
            raise ValueError("table_address_width must be at least 1, got {}".format(table_address_width))
        if table_address_width >= phase_width:
            raise ValueError("table_address_width ({}) must be smaller than phase_width ({})".format(
                table_address_width, phase_width))
        if variant not in VARIANTS:
            raise ValueError("Unknown variant {!r}, expected one of {}".format(variant, VARIANTS))
        return super().__new__(cls, data_width, phase_width, table_address_width, variant)

    @property
    def excess_bits(self):
        return self.phase_width - self.table_address_width

    @property
    def strategy(self):
        if self.excess_bits < 2:
            return "padded"
        elif self.excess_bits == 2:
            return "direct"
        return "interpolated"

    @property
    def interpolated(self):
        return self.strategy == "interpolated"

    @property
    def fraction_width(self):
        return max(self.excess_bits - 2, 0)

    @property
    def amplitude(self):
        return 2**(self.data_width - 1) - 1

    @property
    def ram_style(self):
        return RAM_STYLES[self.variant]

def test_rejects_table_wider_than_phase():
    for taw in (8, 9, 12):
        try:
            SinCosConfig(data_width=16, phase_width=8, table_address_width=taw)
        except ValueError:
            pass
        else:
            raise Exception("table_address_width={} was accepted".format(taw))

def test_rejects_unknown_variant():
    try:
        SinCosConfig(16, 12, 8, variant="ultrascale")
    except ValueError:
        return
    raise Exception("Unknown variant was accepted")

def test_strategy_selection():
    assert SinCosConfig(16, 10, 9).strategy == "padded"
    assert SinCosConfig(16, 10, 8).strategy == "direct"
    assert SinCosConfig(16, 10, 7).strategy == "interpolated"

    config = SinCosConfig(32, 14, 9)
    assert config.excess_bits == 5
    assert config.fraction_width == 3
    assert config.amplitude == 2**31 - 1
    assert config.ram_style == "distributed"
    assert SinCosConfig(32, 14, 9, variant="dsp").ram_style == "block"
