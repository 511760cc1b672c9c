"""REST backend integrations.

Modules:
    client       : ApiClient (bearer auth, error mapping) and ApiError
    normalize    : per-resource response-shape normalization
    quotes       : quote CRUD, clone, status
    orders       : orders and quote → order conversion
    customers    : paginated customers and contacts
    jobs         : jobs, job costs, job materials
    audit        : history, statistics, legal evidence
    intelligence : smart quote suggestions, bundles, templates, health
    catalog      : materials and suppliers
    auth         : login / logout (bearer token)
    customer_health : current and predictive customer health
    financial    : revenue, cost and margin metrics
"""
