import numpy as np

from nmigen import *
from nmigen.sim import Simulator, Tick, Settle
from nmigen.hdl.ir import Fragment

from sincosgen.config import SinCosConfig
from sincosgen.shiftregisters import pipe
from sincosgen.util import round_half_away

# Multiplier operands wider than this no longer fit a single DSP slice and
# the multiply is cascaded over more register stages
DSP_OPERAND_WIDTH = 18

NARROW_LATENCY = 2
WIDE_LATENCY = 5

def interpolator_latency(data_width: int):
    return NARROW_LATENCY if data_width <= DSP_OPERAND_WIDTH else WIDE_LATENCY

def taylor_constants(config: SinCosConfig):
    """
    One phase LSB is pi/2**(phase_width - 1) radians. The remainder is scaled by
    K = round(pi*2**F) and the product brought back down by `shift` bits.
    """
    frac_bits = config.data_width + 2
    K = int(round_half_away(np.pi*2**frac_bits))
    shift = frac_bits + config.phase_width - 1
    return K, shift

def taylor_correct(cos, sin, fraction, config: SinCosConfig):
    """
    Bit exact reference of TaylorInterpolator. Returns the refined (cos, sin)
    for table samples (cos, sin) advanced by `fraction` phase LSBs.
    """
    K, shift = taylor_constants(config)
    bias = 1 << (shift - 1)
    limit = config.amplitude

    clamp = lambda v: max(-limit, min(limit, v))

    refined_cos = []
    refined_sin = []
    for c, s, f in zip(np.atleast_1d(cos), np.atleast_1d(sin), np.atleast_1d(fraction)):
        fk = int(f)*K
        refined_cos.append(clamp(int(c) - ((fk*int(s) + bias) >> shift)))
        refined_sin.append(clamp(int(s) + ((fk*int(c) + bias) >> shift)))
    return np.array(refined_cos, dtype=np.int64), np.array(refined_sin, dtype=np.int64)

class TaylorInterpolator(Elaboratable):
    """
    First order Taylor correction of a coarse (cos, sin) table sample:

        sin(z + dz) = sin(z) + dz*cos(z)
        cos(z + dz) = cos(z) - dz*sin(z)

    dz is the fractional phase remainder. Results are clamped to the table
    amplitude since the tangent overshoots full scale just below pi/2.

    The pipeline is NARROW_LATENCY deep for data widths that fit a DSP
    multiplier and WIDE_LATENCY deep otherwise. Both compute the same numbers.
    """
    def __init__(self, config: SinCosConfig, domain: str="sync"):
        self.config = config
        self.domain = domain
        self.latency = interpolator_latency(config.data_width)

        width = config.data_width

        # Inputs
        self.table_cos = Signal(signed(width))
        self.table_sin = Signal(signed(width))
        self.fraction = Signal(config.fraction_width)

        # Outputs
        self.refined_cos = Signal(signed(width), reset_less=True)
        self.refined_sin = Signal(signed(width), reset_less=True)

    def inputs(self):
        return [self.table_cos, self.table_sin, self.fraction]

    def outputs(self):
        return [self.refined_cos, self.refined_sin]

    def elaborate(self, platform):
        m = Module()

        domain = getattr(m.d, self.domain)
        width = self.config.data_width
        limit = self.config.amplitude
        K, shift = taylor_constants(self.config)
        wide = self.latency == WIDE_LATENCY
        attrs = {"use_dsp": "yes"} if self.config.variant == "dsp" else {}

        def stage(value, shape, registered, **kwargs):
            nonlocal domain
            out = Signal(shape, reset_less=True, **kwargs)
            if registered:
                domain += out.eq(value)
            else:
                m.d.comb += out.eq(value)
            return out

        # Input registers (wide only)
        fraction = pipe(m, self.fraction, int(wide), domain=self.domain)
        cos = pipe(m, self.table_cos, int(wide), domain=self.domain)
        sin = pipe(m, self.table_sin, int(wide), domain=self.domain)

        # Scale the remainder to radians
        fk = stage(fraction*K, unsigned(len(fraction) + K.bit_length()), True, attrs=attrs)
        cos = pipe(m, cos, 1, domain=self.domain)
        sin = pipe(m, sin, 1, domain=self.domain)

        product_shape = signed(len(fk) + width + 1)
        cos_product = stage(fk*cos, product_shape, wide, attrs=attrs)
        sin_product = stage(fk*sin, product_shape, wide, attrs=attrs)
        cos = pipe(m, cos, int(wide), domain=self.domain)
        sin = pipe(m, sin, int(wide), domain=self.domain)

        bias = 1 << (shift - 1)
        sin_step = stage((cos_product + bias) >> shift, signed(width + 2), wide)
        cos_step = stage((sin_product + bias) >> shift, signed(width + 2), wide)
        cos = pipe(m, cos, int(wide), domain=self.domain)
        sin = pipe(m, sin, int(wide), domain=self.domain)

        cos_sum = Signal(signed(width + 2))
        sin_sum = Signal(signed(width + 2))
        m.d.comb += [
            cos_sum.eq(cos - cos_step),
            sin_sum.eq(sin + sin_step),
        ]

        clamp = lambda v: Mux(v > limit, limit, Mux(v < -limit, -limit, v))
        domain += [
            self.refined_cos.eq(clamp(cos_sum)),
            self.refined_sin.eq(clamp(sin_sum)),
        ]

        return m

def check_interpolator(config, samples=64):
    rng = np.random.RandomState(1234)
    cos = rng.randint(0, config.amplitude + 1, samples)
    sin = rng.randint(0, config.amplitude + 1, samples)
    fraction = rng.randint(0, 2**config.fraction_width, samples)
    # Include the overshoot case next to pi/2
    cos[0], sin[0], fraction[0] = config.amplitude//64, config.amplitude, 2**config.fraction_width - 1
    ref_cos, ref_sin = taylor_correct(cos, sin, fraction, config)

    m = TaylorInterpolator(config)
    sim = Simulator(m)
    sim.add_clock(1e-6, domain="sync")

    seen = []

    def process():
        for i in range(samples + m.latency):
            if i < samples:
                yield m.table_cos.eq(int(cos[i]))
                yield m.table_sin.eq(int(sin[i]))
                yield m.fraction.eq(int(fraction[i]))
            yield Tick()
            yield Settle()
            seen.append(((yield m.refined_cos), (yield m.refined_sin)))

    sim.add_process(process)
    sim.run()

    for i in range(samples):
        got = seen[i + m.latency - 1]
        expected = (ref_cos[i], ref_sin[i])
        if got != expected:
            raise Exception("Sample {} got {} but expected {}".format(i, got, expected))
    return m

def test_narrow_interpolator():
    m = check_interpolator(SinCosConfig(data_width=16, phase_width=12, table_address_width=6))
    assert m.latency == 2

def test_wide_interpolator():
    m = check_interpolator(SinCosConfig(data_width=24, phase_width=16, table_address_width=9, variant="dsp"))
    assert m.latency == 5

def test_latency_boundary():
    assert interpolator_latency(18) == NARROW_LATENCY
    assert interpolator_latency(19) == WIDE_LATENCY

def test_reference_tracks_trig():
    config = SinCosConfig(data_width=20, phase_width=16, table_address_width=10)
    A = config.amplitude
    z = 0.3
    step = np.pi/2**(config.phase_width - 1)
    for f in range(2**config.fraction_width):
        c, s = taylor_correct([round(A*np.cos(z))], [round(A*np.sin(z))], [f], config)
        assert abs(c[0] - A*np.cos(z + f*step)) < 2
        assert abs(s[0] - A*np.sin(z + f*step)) < 2

def test_overshoot_is_clamped():
    config = SinCosConfig(data_width=32, phase_width=14, table_address_width=9)
    A = config.amplitude
    # Last table sample, largest remainder
    z = (np.pi/2)*(511/512)
    c, s = taylor_correct([round(A*np.cos(z))], [round(A*np.sin(z))], [7], config)
    assert s[0] == A

def test_both_pipeline_shapes_elaborate():
    for data_width, variant in [(16, "generic"), (18, "dsp"), (19, "generic"), (32, "dsp")]:
        m = TaylorInterpolator(SinCosConfig(data_width=data_width, phase_width=14, table_address_width=9, variant=variant))
        fragment = Fragment.get(m, platform=None)
        assert "sync" in fragment.drivers
