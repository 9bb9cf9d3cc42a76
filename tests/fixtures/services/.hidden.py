def secret():
    return "hidden"


routes = {"get": [{"path": "/hidden", "handlers": [secret]}]}
