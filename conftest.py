import sys
from os.path import dirname, abspath

sys.path.insert(0, dirname(abspath(__file__)))
