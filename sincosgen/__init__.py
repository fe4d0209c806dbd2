from sincosgen.config import SinCosConfig
from sincosgen.generator import SinCosGenerator
from sincosgen.model import SinCosModel
