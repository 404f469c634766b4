"""Number sequence generators built on the non-reentrant demo library.

Modules:
    protocol: NumberGeneratorProtocol (result interface)
    settings: NumberSequenceSettings
    generators: non-thread-safe and thread-safe sequence generators
"""
