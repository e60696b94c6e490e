"""HTTP surface of the contract analysis backend"""
