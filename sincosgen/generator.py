import logging

import numpy as np

from nmigen import *

from sincosgen.accumulator import PhaseAccumulator
from sincosgen.address import make_address_mapper
from sincosgen.config import SinCosConfig
from sincosgen.interpolator import TaylorInterpolator
from sincosgen.quadrant import QuadrantReconstructor
from sincosgen.shiftregisters import DelayLine, pipe
from sincosgen.table import SinCosTable

logger = logging.getLogger(__name__)

ADDRESS_LATENCY = 1
TABLE_LATENCY = 1
OUTPUT_LATENCY = 1

class SinCosGenerator(Elaboratable):
    """
    Phase accumulator driven sin/cos generator.

    The accumulator phase is split into a quadrant and a first quadrant table
    address (plus a remainder when the phase is finer than the table). The
    table sample is refined by a first order Taylor step when a remainder
    exists and finally mapped onto the full circle with the quadrant bits,
    delayed by exactly as many cycles as the lookup takes.

    A phase held by the accumulator at tick t shows up on sin_out/cos_out at
    tick t + latency. Until `latency` ticks have passed since reset the
    outputs are not meaningful and `valid` is low.
    """
    def __init__(self, data_width=16, phase_width=16, table_address_width=10, variant="generic", domain="sync"):
        self.config = SinCosConfig(data_width, phase_width, table_address_width, variant)
        self.domain = domain

        self.table = SinCosTable(self.config)
        self.accumulator = PhaseAccumulator(phase_width, domain=domain)
        self.mapper = make_address_mapper(self.config)

        if self.config.interpolated:
            self.interpolator = TaylorInterpolator(self.config, domain=domain)
            interpolation_latency = self.interpolator.latency
        else:
            self.interpolator = None
            interpolation_latency = 0

        # Cycles from accumulator to refined first quadrant value; the quadrant
        # delay line is sized from this and nothing else. The interpolator's
        # 2 or 5 stages sit inside it, so the total latency is 3, 5 or 8.
        self.lookup_latency = ADDRESS_LATENCY + TABLE_LATENCY + interpolation_latency
        self.latency = self.lookup_latency + OUTPUT_LATENCY

        self.quadrant_delay = DelayLine(width=2, depth=self.lookup_latency, domain=domain)
        self.reconstructor = QuadrantReconstructor(data_width)

        # Inputs
        self.reset = Signal()
        self.phase_enable = Signal()

        # Outputs
        self.sin_out = Signal(signed(data_width), reset_less=True)
        self.cos_out = Signal(signed(data_width), reset_less=True)
        self.valid = Signal()
        self.phase = Signal(phase_width)

        logger.debug("SinCosGenerator {} using {} addressing, latency {}".format(
            tuple(self.config), self.config.strategy, self.latency))

    def inputs(self):
        return [self.reset, self.phase_enable]

    def outputs(self):
        return [self.sin_out, self.cos_out]

    def ports(self):
        return self.inputs() + self.outputs() + [self.valid]

    def elaborate(self, platform):
        m = Module()

        domain = getattr(m.d, self.domain)
        width = self.config.data_width

        m.submodules.accumulator = accumulator = self.accumulator
        m.submodules.mapper = mapper = self.mapper
        m.submodules.quadrant_delay = quadrant_delay = self.quadrant_delay
        m.submodules.reconstructor = reconstructor = self.reconstructor

        m.d.comb += [
            accumulator.reset.eq(self.reset),
            accumulator.enable.eq(self.phase_enable),
            mapper.phase.eq(accumulator.phase),
            quadrant_delay.input.eq(accumulator.quadrant),
            self.phase.eq(accumulator.phase),
        ]

        # Address stage
        address = pipe(m, mapper.address, ADDRESS_LATENCY, domain=self.domain, name="address")

        # Table stage
        rom = self.table.memory()
        m.submodules.rom_rport = rport = rom.read_port(domain=self.domain)
        table_cos = Signal(signed(width))
        table_sin = Signal(signed(width))
        m.d.comb += [
            rport.addr.eq(address),
            table_cos.eq(rport.data[:width]),
            table_sin.eq(rport.data[width:]),
        ]

        # Refinement
        if self.interpolator is not None:
            m.submodules.interpolator = interpolator = self.interpolator
            fraction = pipe(m, mapper.fraction, ADDRESS_LATENCY + TABLE_LATENCY, domain=self.domain, name="fraction")
            m.d.comb += [
                interpolator.table_cos.eq(table_cos),
                interpolator.table_sin.eq(table_sin),
                interpolator.fraction.eq(fraction),
            ]
            refined_cos, refined_sin = interpolator.refined_cos, interpolator.refined_sin
        else:
            refined_cos, refined_sin = table_cos, table_sin

        # Output stage
        m.d.comb += [
            reconstructor.quadrant.eq(quadrant_delay.output),
            reconstructor.sin.eq(refined_sin),
            reconstructor.cos.eq(refined_cos),
        ]
        domain += [
            self.sin_out.eq(reconstructor.sin_out),
            self.cos_out.eq(reconstructor.cos_out),
        ]

        # Pipeline fill tracking
        filled = Signal(range(self.latency + 1))
        with m.If(self.reset):
            domain += filled.eq(0)
        with m.Elif(filled != self.latency):
            domain += filled.eq(filled + 1)
        m.d.comb += self.valid.eq(filled == self.latency)

        return m

def check_against_model(generator, cycles):
    from sincosgen.model import SinCosModel
    from sincosgen.sim import run

    trace = run(generator, cycles)
    L = generator.latency
    sin, cos = SinCosModel(generator.config).sincos(trace["phase"][:cycles + 1 - L])

    assert not trace["valid"][:L].any()
    assert trace["valid"][L:].all()
    for n in range(L, cycles + 1):
        got = (trace["sin"][n], trace["cos"][n])
        expected = (sin[n - L], cos[n - L])
        if got != expected:
            raise Exception("At tick {} got {} but expected {}".format(n, got, expected))
    return trace

def test_latency_per_configuration():
    for args, latency in [
        ((12, 10, 9), 3),
        ((12, 10, 8), 3),
        ((16, 12, 7), 5),
        ((18, 12, 7), 5),
        ((19, 12, 7), 8),
        ((32, 14, 9), 8),
    ]:
        generator = SinCosGenerator(*args)
        assert generator.latency == latency, args
        assert generator.quadrant_delay.depth == generator.lookup_latency == latency - 1
        check_against_model(generator, 96)

def test_full_cycle_without_interpolation():
    generator = SinCosGenerator(data_width=12, phase_width=10, table_address_width=8)
    cycles = 2**10 + generator.latency
    trace = check_against_model(generator, cycles)

    L = generator.latency
    sin = trace["sin"][L:L + 1024]
    cos = trace["cos"][L:L + 1024]
    table = generator.table
    for i in range(256):
        assert (sin[256 + i], cos[256 + i]) == (table.cos[i], -table.sin[i])
        assert (sin[512 + i], cos[512 + i]) == (-table.sin[i], -table.cos[i])
        assert (sin[768 + i], cos[768 + i]) == (-table.cos[i], table.sin[i])

def test_full_cycle_with_interpolation():
    from sincosgen.model import magnitude_error, value_error

    generator = SinCosGenerator(data_width=16, phase_width=12, table_address_width=7, variant="dsp")
    cycles = 2**12 + generator.latency
    trace = check_against_model(generator, cycles)

    L = generator.latency
    phases = trace["phase"][:2**12]
    sin = trace["sin"][L:L + 2**12]
    cos = trace["cos"][L:L + 2**12]
    assert list(phases) == list(range(2**12))
    assert magnitude_error(sin, cos, generator.config.amplitude)[0] < 4
    assert value_error(phases, sin, cos, generator.config)[0] < 4

def test_phase_step_latency():
    from sincosgen.model import SinCosModel
    from sincosgen.sim import run

    for args in [(12, 10, 8), (16, 12, 7), (24, 14, 8)]:
        generator = SinCosGenerator(*args)
        L = generator.latency
        step = 20

        enable = np.zeros(40, dtype=np.uint8)
        enable[step] = 1
        trace = run(generator, 40, enable=enable)

        (sin0, sin1), (cos0, cos1) = SinCosModel(generator.config).sincos([0, 1])
        assert trace["phase"][step] == 0 and trace["phase"][step + 1] == 1
        assert (trace["sin"][step + L], trace["cos"][step + L]) == (sin0, cos0)
        assert (trace["sin"][step + 1 + L], trace["cos"][step + 1 + L]) == (sin1, cos1)
        assert (sin0, cos0) != (sin1, cos1)

def test_example_scenario():
    from sincosgen.sim import run

    generator = SinCosGenerator(data_width=32, phase_width=14, table_address_width=9)
    assert generator.config.strategy == "interpolated"
    assert generator.latency == 8

    trace = run(generator, 12, enable=np.zeros(12))
    assert trace["valid"][8]
    assert trace["sin"][8] == 0
    assert trace["cos"][8] == 2**31 - 1

def test_reset_restarts_phase_and_fill():
    from sincosgen.model import SinCosModel
    from sincosgen.sim import run

    generator = SinCosGenerator(data_width=16, phase_width=12, table_address_width=7)
    L = generator.latency
    reset = np.zeros(60, dtype=np.uint8)
    reset[30] = 1
    trace = run(generator, 60, reset=reset)

    assert trace["phase"][30] == 30
    assert trace["phase"][31] == 0
    assert trace["valid"][30]
    assert not trace["valid"][31:31 + L].any()
    assert trace["valid"][31 + L:].all()

    sin, cos = SinCosModel(generator.config).sincos(np.arange(60 - 30 - L))
    assert list(trace["sin"][31 + L:]) == list(sin)
    assert list(trace["cos"][31 + L:]) == list(cos)

def test_disabled_accumulator_drains_pipeline():
    from sincosgen.model import SinCosModel
    from sincosgen.sim import run

    generator = SinCosGenerator(data_width=20, phase_width=12, table_address_width=8)
    L = generator.latency
    enable = np.ones(40, dtype=np.uint8)
    enable[20:] = 0
    trace = run(generator, 40, enable=enable)

    # Accumulator holds at 20, samples already in flight keep emerging
    assert (trace["phase"][20:] == 20).all()
    sin, cos = SinCosModel(generator.config).sincos(np.arange(21))
    for n in range(L, 41):
        assert (trace["sin"][n], trace["cos"][n]) == (sin[min(n - L, 20)], cos[min(n - L, 20)])

def test_rejects_invalid_configuration():
    for args in [(16, 8, 8), (16, 8, 9), (16, 12, 7, "versal")]:
        try:
            SinCosGenerator(*args)
        except ValueError:
            continue
        raise Exception("{} was accepted".format(args))
