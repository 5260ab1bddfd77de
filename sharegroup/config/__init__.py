"""
Share group configuration: key definitions, typed access and validation.

Provides the ConfigDef registry, the AbstractConfig accessor, the
ShareGroupConfig schema with its cross-field ordering checks, and the
environment-backed settings loader used at process startup.
"""
