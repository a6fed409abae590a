"""
Content: the demo dashboard resource and its text representations

- data.py:      record lookup by identifier (hardcoded demo data)
- templates.py: HTML / Markdown / JSON / YAML bodies for a record
"""
