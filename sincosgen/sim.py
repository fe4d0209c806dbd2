import numpy as np

from nmigen.sim import Simulator, Tick, Settle

def run(dut, cycles, enable=None, reset=None, vcd=None):
    """
    Clock a SinCosGenerator for `cycles` ticks and return a dict of numpy
    arrays. Index n holds the values after n ticks (index 0 is the initial
    state). `enable[n]` and `reset[n]` are applied on the tick that produces
    index n + 1; enable defaults to always on and reset to off.
    """
    enable = np.ones(cycles, dtype=np.uint8) if enable is None else np.asarray(enable)
    reset = np.zeros(cycles, dtype=np.uint8) if reset is None else np.asarray(reset)

    names = ["sin", "cos", "valid", "phase"]
    signals = [dut.sin_out, dut.cos_out, dut.valid, dut.phase]
    trace = {name: np.zeros((cycles + 1,), dtype=np.int64) for name in names}

    sim = Simulator(dut)
    sim.add_clock(1e-6, domain=dut.domain)

    def sample(n):
        for name, signal in zip(names, signals):
            trace[name][n] = yield signal

    def process():
        yield Settle()
        yield from sample(0)
        for n in range(cycles):
            yield dut.phase_enable.eq(int(enable[n]))
            yield dut.reset.eq(int(reset[n]))
            yield Tick(dut.domain)
            yield Settle()
            yield from sample(n + 1)

    sim.add_process(process)

    if vcd is not None:
        with sim.write_vcd(vcd):
            sim.run()
    else:
        sim.run()

    return trace
