"""CBT-I sleep diary metrics and sleep window titration engine"""

__version__ = "0.1.0"
