"""
Services with side effects: prompting, the proving service and the chain.
"""
