"""
PTAlts event feeds: restock notifications and order/token delivery.
"""
