import sys

from candle_pipeline.cli import main

sys.exit(main())
