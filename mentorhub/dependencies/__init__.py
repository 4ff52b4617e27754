# mentorhub/dependencies/__init__.py
