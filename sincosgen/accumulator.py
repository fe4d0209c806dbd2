from nmigen import *
from nmigen.sim import Simulator, Tick, Settle

class PhaseAccumulator(Elaboratable):
    """
    Free-running phase counter. Advances by one every enabled cycle and
    wraps modulo 2**phase_width; reset forces the phase back to zero.
    """
    def __init__(self, phase_width=16, domain="sync"):
        self.phase_width = phase_width
        self.domain = domain

        # Inputs
        self.reset = Signal()
        self.enable = Signal()

        # Outputs
        self.phase = Signal(phase_width)
        self.quadrant = Signal(2)

    def inputs(self):
        return [self.reset, self.enable]

    def outputs(self):
        return [self.phase, self.quadrant]

    def elaborate(self, platform):
        m = Module()

        domain = getattr(m.d, self.domain)
        with m.If(self.reset):
            domain += self.phase.eq(0)
        with m.Elif(self.enable):
            domain += self.phase.eq(self.phase + 1)

        m.d.comb += self.quadrant.eq(self.phase[-2:])

        return m

def test_accumulator_wraps():
    m = PhaseAccumulator(phase_width=4)
    sim = Simulator(m)
    sim.add_clock(1e-6, domain="sync")

    def process():
        yield m.enable.eq(1)
        for i in range(1, 40):
            yield Tick()
            yield Settle()
            phase = yield m.phase
            assert phase == i % 16
            assert (yield m.quadrant) == phase >> 2

    sim.add_process(process)
    sim.run()

def test_accumulator_enable_and_reset():
    m = PhaseAccumulator(phase_width=6)
    sim = Simulator(m)
    sim.add_clock(1e-6, domain="sync")

    def process():
        yield m.enable.eq(1)
        for _ in range(5):
            yield Tick()
        yield m.enable.eq(0)
        for _ in range(3):
            yield Tick()
            yield Settle()
            assert (yield m.phase) == 5

        # Reset wins over enable
        yield m.enable.eq(1)
        yield m.reset.eq(1)
        yield Tick()
        yield Settle()
        assert (yield m.phase) == 0

        yield m.reset.eq(0)
        yield Tick()
        yield Settle()
        assert (yield m.phase) == 1

    sim.add_process(process)
    sim.run()
