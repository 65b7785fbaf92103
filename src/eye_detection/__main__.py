import sys

from eye_detection.main import main

sys.exit(main())
