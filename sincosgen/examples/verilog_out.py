import sys
import logging

from nmigen.back import verilog

from sincosgen.generator import SinCosGenerator

# Usage: verilog_out.py DATA_WIDTH PHASE_WIDTH TABLE_ADDRESS_WIDTH [VARIANT] > sincos.v
if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    data_width, phase_width, table_address_width = map(int, sys.argv[1:4])
    variant = sys.argv[4] if len(sys.argv) > 4 else "generic"

    generator = SinCosGenerator(data_width, phase_width, table_address_width, variant=variant)
    print(verilog.convert(generator, name="sincos", ports=generator.ports()))
