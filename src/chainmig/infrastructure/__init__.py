"""Infrastructure layer — legacy file loading, output writing, PKI.

This layer depends on stdlib and third-party libs (cryptography, tomli-w)
plus domain models. It must never import from services, commands, or output.
The service layer drives the pipeline across both layers.
"""
