"""ContractAnalyser backend"""
