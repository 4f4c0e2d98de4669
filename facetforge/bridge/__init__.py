"""Bridge layer between facetforge and an EVM network.

Modules
-------
client
    ``ChainClient`` protocol — the only surface stages use to deploy
    contracts and send transactions — and ``TransactionFailedError``.
artifacts
    ``ContractArtifactStore`` reads compiled Hardhat/Foundry artifacts:
    ABI, bytecode and each module's operation catalog.
web3_client
    ``Web3ChainClient`` implements ``ChainClient`` with web3.py and a
    locally-signing eth-account key.

Stages never import web3 directly; tests inject a recording fake.
"""
