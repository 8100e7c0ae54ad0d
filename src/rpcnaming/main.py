
from rpcnaming.server.service import ServiceHost, ServiceSettings

SERVICE_NAME = "org.example.calc"


def build_calc_service(settings: ServiceSettings | dict | None = None, **kwargs) -> ServiceHost:
    service = ServiceHost(name=SERVICE_NAME, settings=settings, **kwargs)

    # --- Register example methods ------------------------------------------------
    @service.register("add")
    def add(a: float, b: float) -> float:
        """Add two numbers."""
        return a + b

    @service.register("mul")
    def mul(a: float, b: float) -> float:
        """Multiply two numbers."""
        return a * b

    @service.register("echo")
    def echo(msg: str) -> str:
        """Return the message unchanged."""
        return msg

    return service


if __name__ == "__main__":
    build_calc_service().run()
