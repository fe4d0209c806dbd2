import numpy as np

from sincosgen.address import make_address_mapper
from sincosgen.config import SinCosConfig
from sincosgen.interpolator import taylor_correct
from sincosgen.quadrant import reconstruct
from sincosgen.table import SinCosTable

class SinCosModel(object):
    """Numerical model of SinCosGenerator, bit exact but without pipelining"""
    def __init__(self, config: SinCosConfig):
        self.config = config
        self.table = SinCosTable(config)
        self.mapper = make_address_mapper(config)

    def sincos(self, phases=None):
        """Returns (sin, cos) for each phase, all phases of a cycle by default"""
        if phases is None:
            phases = np.arange(2**self.config.phase_width)
        phases = np.atleast_1d(np.asarray(phases, dtype=np.int64))

        quadrant, address, fraction = np.array([self.mapper.split(int(p)) for p in phases],
                                               dtype=np.int64).T.reshape(3, -1)
        cos = self.table.cos[address]
        sin = self.table.sin[address]
        if self.config.interpolated:
            cos, sin = taylor_correct(cos, sin, fraction, self.config)

        out = np.array([reconstruct(q, s, c, self.config.data_width)
                        for q, s, c in zip(quadrant, sin, cos)], dtype=np.int64).reshape(-1, 2)
        return out[:, 0], out[:, 1]

def angles(phases, phase_width: int):
    return 2*np.pi*np.asarray(phases, dtype=np.float64)/2**phase_width

def magnitude_error(sin, cos, amplitude):
    """Returns (max, rms) deviation of |cos + j*sin| from the amplitude, in LSB"""
    xy = np.asarray(cos, dtype=np.float64) + 1j*np.asarray(sin, dtype=np.float64)
    err = np.absolute(xy) - amplitude
    return np.abs(err).max(), (err**2).mean()**.5

def value_error(phases, sin, cos, config: SinCosConfig):
    """Returns (max, rms) distance from the ideal complex sample, in LSB"""
    ideal = config.amplitude*np.exp(1j*angles(phases, config.phase_width))
    xy = np.asarray(cos, dtype=np.float64) + 1j*np.asarray(sin, dtype=np.float64)
    err = np.absolute(xy - ideal)
    return err.max(), (err**2).mean()**.5

def test_model_without_interpolation_is_the_table():
    config = SinCosConfig(data_width=12, phase_width=10, table_address_width=8)
    model = SinCosModel(config)
    sin, cos = model.sincos()

    assert np.array_equal(sin[:256], model.table.sin)
    assert np.array_equal(cos[:256], model.table.cos)
    # Quadrant 1 is the swapped, negated table
    assert np.array_equal(sin[256:512], model.table.cos)
    assert np.array_equal(cos[256:512], -model.table.sin)

def test_model_accuracy():
    for config, bound in [
        (SinCosConfig(12, 10, 8), 1),
        (SinCosConfig(16, 11, 10), 1),
        (SinCosConfig(16, 12, 7), 4),
        (SinCosConfig(24, 16, 12), 4),
    ]:
        phases = np.arange(2**config.phase_width)
        sin, cos = SinCosModel(config).sincos(phases)
        max_err, rms_err = value_error(phases, sin, cos, config)
        assert max_err < bound, (config, max_err)
        assert rms_err < max_err
        max_mag, _ = magnitude_error(sin, cos, config.amplitude)
        assert max_mag < bound

def test_model_example_scenario():
    config = SinCosConfig(data_width=32, phase_width=14, table_address_width=9)
    sin, cos = SinCosModel(config).sincos([0, 2**12, 2**13, 3*2**12])
    A = 2**31 - 1
    assert list(sin) == [0, A, 0, -A]
    assert list(cos) == [A, 0, -A, 0]

def test_model_accepts_no_phases():
    model = SinCosModel(SinCosConfig(16, 12, 7))
    sin, cos = model.sincos([])
    assert len(sin) == len(cos) == 0
    sin, cos = model.sincos(5)
    assert len(sin) == len(cos) == 1
