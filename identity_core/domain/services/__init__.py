"""Domain Services for the identity bounded context.

- Policy: password rule set loading and evaluation
- Account: status lifecycle and parent hierarchy
- Roles: role to scope resolution
- Orchestration: account and user use cases
- Profiles: per-user cloud profiles
"""
