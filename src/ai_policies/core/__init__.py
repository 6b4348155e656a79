"""Core of ai-policies: the composition engine and its ambient helpers."""
