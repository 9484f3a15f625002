"""
Generators — concrete task pipelines built on the lifecycle engine.

Each generator registers its base task groups in phase order and
runs them through ``GeneratorRunner`` with the configured blueprints.
"""
