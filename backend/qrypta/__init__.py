"""
qrypta-pqc: prove-then-submit transfer pipeline for the quantumTransferZK contract
"""

__version__ = "0.1.0"
