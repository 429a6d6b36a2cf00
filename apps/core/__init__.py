"""
Core building blocks shared by every Gestio app.
"""
