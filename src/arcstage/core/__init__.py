"""
Core staging engine for arcstage.
Entries, the entry factory, the stager and the writable archive base class.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""
