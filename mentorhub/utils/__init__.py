# mentorhub/utils/__init__.py
