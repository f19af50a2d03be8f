# -*- coding: utf-8 -*-
import sys

from .app import main

sys.exit(main())
