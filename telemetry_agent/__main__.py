import sys

from telemetry_agent.main import main

sys.exit(main())
