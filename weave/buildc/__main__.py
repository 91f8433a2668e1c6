# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import sys

from weave.buildc.buildc import main

sys.exit(main())
