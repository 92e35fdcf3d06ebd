"""
Components layer.

Small, side-effect free steps of the deformation pipeline:
- identifier normalization (`identifier_normalizer.py`)
- prompt assembly with one system prompt per reply variant (`prompts/*.system`)
- decoding of model replies (`response_decoder.py`)
"""
