def package_init():
    return "package init"


routes = {"get": [{"path": "/package-init", "handlers": [package_init]}]}
