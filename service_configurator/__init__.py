"""
Configurator Service package.
"""
