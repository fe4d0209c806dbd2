from nmigen import *
from nmigen.sim import Simulator, Tick, Settle

class DelayLine(Elaboratable):
    """
    A reset-less shift register that presents its input `depth` clock cycles
    later. A depth of 0 is a plain wire.
    """
    def __init__(self, width=2, depth=1, domain="sync"):
        self.width = width
        self.depth = depth
        self.domain = domain

        self.input = Signal(width)
        self.output = Signal(width)

    def inputs(self):
        return [self.input]

    def outputs(self):
        return [self.output]

    def elaborate(self, platform):
        m = Module()
        m.d.comb += self.output.eq(pipe(m, self.input, self.depth, domain=self.domain))
        return m

def pipe(m, value, depth, domain="sync", name=None):
    """Add `depth` reset-less register stages after value and return the last one"""
    value = Value.cast(value)
    domain = getattr(m.d, domain)
    for i in range(depth):
        stage = Signal(value.shape(), reset_less=True,
                       name=None if name is None else "{}_d{}".format(name, i + 1))
        domain += stage.eq(value)
        value = stage
    return value

def test_delay_line():
    m = DelayLine(width=2, depth=3)
    sim = Simulator(m)
    sim.add_clock(1e-6, domain="sync")

    data = [1, 2, 3, 0, 2, 1, 1, 3]
    seen = []

    def process():
        for i in range(len(data) + 3):
            yield m.input.eq(data[i] if i < len(data) else 0)
            yield Tick()
            yield Settle()
            seen.append((yield m.output))

    sim.add_process(process)
    sim.run()

    # After tick n the output holds what was presented before tick n - 2
    assert seen[2:2 + len(data)] == data

def test_zero_depth_is_a_wire():
    m = DelayLine(width=4, depth=0)
    sim = Simulator(m)

    def process():
        yield m.input.eq(9)
        yield Settle()
        assert (yield m.output) == 9

    sim.add_process(process)
    sim.run()
