"""Built-in checks"""
