"""ABI fragments of the wager contract used by the gateway."""
import json

WAGER_ABI = json.loads('''
[
    {
        "inputs": [
            {"internalType": "string", "name": "_title", "type": "string"},
            {"internalType": "uint256", "name": "_threshold", "type": "uint256"}
        ],
        "name": "createBet",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "_betId", "type": "uint256"},
            {"internalType": "bool", "name": "_betForExceed", "type": "bool"}
        ],
        "name": "placeBet",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "_betId", "type": "uint256"},
            {"internalType": "bytes[]", "name": "priceUpdate", "type": "bytes[]"}
        ],
        "name": "endEpoch",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getAllBets",
        "outputs": [
            {
                "components": [
                    {"internalType": "uint256", "name": "id", "type": "uint256"},
                    {"internalType": "string", "name": "title", "type": "string"},
                    {"internalType": "uint256", "name": "threshold", "type": "uint256"},
                    {"internalType": "uint256", "name": "totalPoolForExceed", "type": "uint256"},
                    {"internalType": "uint256", "name": "totalPoolForNotExceed", "type": "uint256"},
                    {"internalType": "bool", "name": "epochEnded", "type": "bool"}
                ],
                "internalType": "struct Wager.BetInfo[]",
                "name": "",
                "type": "tuple[]"
            }
        ],
        "stateMutability": "view",
        "type": "function"
    }
]
''')
