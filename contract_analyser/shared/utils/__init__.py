"""Utility helpers"""

from contract_analyser.shared.utils.slug import slugify_key, message_key

__all__ = ['slugify_key', 'message_key']
