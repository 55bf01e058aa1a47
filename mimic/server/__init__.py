"""Mimic FastAPI Server"""
from .client import MimicClient, contract_info

__all__ = ['MimicClient', 'contract_info']
