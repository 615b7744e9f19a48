import sys
import os

# Make the 'pyv_csim' package importable when running from a source checkout.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
