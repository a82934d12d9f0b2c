"""
Public API helpers for arcstage.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""
