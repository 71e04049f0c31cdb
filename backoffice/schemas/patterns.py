from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
GLN_PATTERN = re.compile(r'^\d{13}$')
