import sys

from scrollshot.main import main


sys.exit(main())
