from nmigen import *
from nmigen.sim import Simulator, Settle

from sincosgen.util import wrap

class QuadrantReconstructor(Elaboratable):
    """
    Maps first quadrant (sin, cos) values onto the full circle:

        quadrant | sin  | cos
        ---------+------+-----
            0    |  s   |  c
            1    |  c   | -s
            2    | -s   | -c
            3    | -c   |  s

    Negation is plain two's complement truncated to the output width, so the
    most negative value wraps onto itself.
    """
    def __init__(self, data_width=16):
        self.data_width = data_width

        # Inputs
        self.quadrant = Signal(2)
        self.sin = Signal(signed(data_width))
        self.cos = Signal(signed(data_width))

        # Outputs
        self.sin_out = Signal(signed(data_width))
        self.cos_out = Signal(signed(data_width))

    def inputs(self):
        return [self.quadrant, self.sin, self.cos]

    def outputs(self):
        return [self.sin_out, self.cos_out]

    def elaborate(self, platform):
        m = Module()

        # quadrant[0] swaps, the sign of each output follows from the quadrant
        swapped_sin = Signal(signed(self.data_width))
        swapped_cos = Signal(signed(self.data_width))
        m.d.comb += [
            swapped_sin.eq(Mux(self.quadrant[0], self.cos, self.sin)),
            swapped_cos.eq(Mux(self.quadrant[0], self.sin, self.cos)),
        ]

        negate_sin = self.quadrant[1]
        negate_cos = self.quadrant[0] ^ self.quadrant[1]
        m.d.comb += [
            self.sin_out.eq(Mux(negate_sin, -swapped_sin, swapped_sin)),
            self.cos_out.eq(Mux(negate_cos, -swapped_cos, swapped_cos)),
        ]

        return m

def reconstruct(quadrant, sin, cos, data_width: int):
    """Reference of QuadrantReconstructor for a single sample"""
    quadrant = int(quadrant) & 3
    sin, cos = int(sin), int(cos)
    if quadrant == 0:
        out = (sin, cos)
    elif quadrant == 1:
        out = (cos, -sin)
    elif quadrant == 2:
        out = (-sin, -cos)
    else:
        out = (-cos, sin)
    return wrap(out[0], data_width), wrap(out[1], data_width)

def test_quadrant_table():
    m = QuadrantReconstructor(data_width=8)
    sim = Simulator(m)

    expected = {
        0: (11, -37),
        1: (-37, -11),
        2: (-11, 37),
        3: (37, 11),
    }

    def process():
        yield m.sin.eq(11)
        yield m.cos.eq(-37)
        for quadrant, out in expected.items():
            yield m.quadrant.eq(quadrant)
            yield Settle()
            got = ((yield m.sin_out), (yield m.cos_out))
            assert got == out
            assert reconstruct(quadrant, 11, -37, 8) == out

    sim.add_process(process)
    sim.run()

def test_negation_wraps():
    m = QuadrantReconstructor(data_width=8)
    sim = Simulator(m)

    def process():
        yield m.sin.eq(-128)
        yield m.cos.eq(-128)
        yield m.quadrant.eq(2)
        yield Settle()
        assert (yield m.sin_out) == -128
        assert (yield m.cos_out) == -128
        assert reconstruct(2, -128, -128, 8) == (-128, -128)

        yield m.sin.eq(127)
        yield Settle()
        assert (yield m.sin_out) == -127

    sim.add_process(process)
    sim.run()
