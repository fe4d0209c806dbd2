from nmigen import *
from nmigen.sim import Simulator, Settle

from sincosgen.config import SinCosConfig

class AddressMapper(Elaboratable):
    """
    Splits a phase word into the quadrant (top two bits), the first quadrant
    table address and, where the phase is finer than the table, a fractional
    remainder. Purely combinational; the generator registers the outputs.

    Subclasses implement both the gateware (elaborate) and split(), a plain
    python reference of the same mapping.
    """
    def __init__(self, config: SinCosConfig):
        self.config = config

        self.phase = Signal(config.phase_width)

        self.quadrant = Signal(2)
        self.address = Signal(config.table_address_width)
        # Left at zero unless the phase is finer than the table
        self.fraction = Signal(max(config.fraction_width, 1))

    def inputs(self):
        return [self.phase]

    def outputs(self):
        return [self.quadrant, self.address, self.fraction]

    @property
    def offset_width(self):
        # Phase bits left once the quadrant is removed
        return self.config.phase_width - 2

    def split(self, phase: int):
        raise NotImplementedError()

    def elaborate(self, platform):
        m = Module()
        m.d.comb += self.quadrant.eq(self.phase[-2:])
        self.map(m, self.phase[:-2])
        return m

    def map(self, m, offset):
        raise NotImplementedError()

class PaddedAddressMapper(AddressMapper):
    """The table is finer than the phase: offset bits are left aligned in the address"""
    def split(self, phase):
        padding = self.config.table_address_width - self.offset_width
        offset = phase & ((1 << self.offset_width) - 1)
        return (phase >> self.offset_width) & 3, offset << padding, 0

    def map(self, m, offset):
        padding = self.config.table_address_width - self.offset_width
        m.d.comb += self.address.eq(Cat(Const(0, padding), offset))

class DirectAddressMapper(AddressMapper):
    """One table entry per phase step"""
    def split(self, phase):
        offset = phase & ((1 << self.offset_width) - 1)
        return (phase >> self.offset_width) & 3, offset, 0

    def map(self, m, offset):
        m.d.comb += self.address.eq(offset)

class InterpolatingAddressMapper(AddressMapper):
    """Upper offset bits address the table, the lower ones are the remainder"""
    def split(self, phase):
        fraction_width = self.config.fraction_width
        offset = phase & ((1 << self.offset_width) - 1)
        return ((phase >> self.offset_width) & 3,
                offset >> fraction_width,
                offset & ((1 << fraction_width) - 1))

    def map(self, m, offset):
        fraction_width = self.config.fraction_width
        m.d.comb += [
            self.address.eq(offset[fraction_width:]),
            self.fraction.eq(offset[:fraction_width]),
        ]

MAPPERS = {
    "padded": PaddedAddressMapper,
    "direct": DirectAddressMapper,
    "interpolated": InterpolatingAddressMapper,
}

def make_address_mapper(config: SinCosConfig):
    return MAPPERS[config.strategy](config)

def check_mapper(config):
    m = make_address_mapper(config)
    sim = Simulator(m)

    def process():
        for phase in range(2**config.phase_width):
            yield m.phase.eq(phase)
            yield Settle()
            got = ((yield m.quadrant), (yield m.address), (yield m.fraction))
            if got != m.split(phase):
                raise Exception("At phase {} got {} but expected {}".format(phase, got, m.split(phase)))

    sim.add_process(process)
    sim.run()
    return m

def test_padded_mapper():
    m = check_mapper(SinCosConfig(data_width=8, phase_width=7, table_address_width=6))
    assert isinstance(m, PaddedAddressMapper)
    assert m.split(0b1000011) == (2, 0b000110, 0)

def test_direct_mapper():
    m = check_mapper(SinCosConfig(data_width=8, phase_width=7, table_address_width=5))
    assert isinstance(m, DirectAddressMapper)
    assert m.split(0b1100011) == (3, 0b00011, 0)

def test_interpolating_mapper():
    m = check_mapper(SinCosConfig(data_width=8, phase_width=9, table_address_width=4))
    assert isinstance(m, InterpolatingAddressMapper)
    assert m.config.fraction_width == 3
    assert m.split(0b011011101) == (1, 0b1011, 0b101)
