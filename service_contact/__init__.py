"""
Contact Message Service: public contact submissions and an operator message log.
"""
