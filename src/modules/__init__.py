"""
Domain modules of the present engine.

- present: distribution, listing and claiming of presents
- inventory: item grants backing a claim
- user: viewer verification
- shared: base service/repository and domain exceptions
"""
