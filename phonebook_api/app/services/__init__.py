"""
Service layer abstraction.

Services encapsulate the business rules of the directory and talk to
the record store; API handlers only translate HTTP to service calls.
"""
