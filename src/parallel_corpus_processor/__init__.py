"""
Parallel Corpus Processor - staged preparation of bilingual text corpora.
"""

__version__ = "0.1.0"
