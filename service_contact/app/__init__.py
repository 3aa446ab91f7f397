"""
Contact service application package.

- store: durable JSON-document message store with a single-writer lock
- ratelimit: fixed-window admission gate for the public write path
- auth: HTTP Basic access gate for the operator read path
- validation: submission checks and markup escaping
"""
