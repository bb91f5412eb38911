"""
Minimal ABI for the QRYP transfer contract
"""

QUANTUM_TRANSFER_FN = "quantumTransferZK"

QRYP_ABI = [
    {
        "type": "function",
        "name": QUANTUM_TRANSFER_FN,
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "publicValues", "type": "bytes"},
            {"name": "proofBytes", "type": "bytes"},
            {"name": "isoReference", "type": "string"},
        ],
        "outputs": [],
    }
]
