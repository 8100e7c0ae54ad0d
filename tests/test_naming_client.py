import pytest

from conftest import make_entry
from rpcnaming.client.naming_client import NamingClient
from rpcnaming.errors import NamingUnavailableError
from rpcnaming.naming.node import NamingNode


@pytest.fixture
def node(router):
    node = NamingNode({"node_id": "ns"})
    router.add("ns", node.app)
    return node


@pytest.mark.asyncio
async def test_register_lookup_resolve(node, router):
    async with NamingClient("http://ns:5000/", transport=router) as client:
        await client.register(make_entry(name="org.dept", iface=["ping"]))

        assert await client.lookup("org.dept.svc") == []
        exact = await client.lookup("org.dept")
        resolved = await client.resolve("org.dept.svc")
        result = await client.resolve_result("org.dept.svc")
        info = await client.info()

    assert [e.iface for e in exact] == [["ping"]]
    assert [e.name for e in resolved] == ["org.dept"]
    assert result.via == "ns"
    assert info["ownNames"] == ["org.dept"]


@pytest.mark.asyncio
async def test_unresolved_name_returns_empty(node, router):
    async with NamingClient("http://ns", transport=router) as client:
        assert await client.resolve("nothing") == []


@pytest.mark.asyncio
async def test_unreachable_node_raises(router):
    async with NamingClient("http://down", transport=router) as client:
        with pytest.raises(NamingUnavailableError):
            await client.lookup("org.example.calc")
        with pytest.raises(NamingUnavailableError):
            await client.resolve("org.example.calc")


@pytest.mark.asyncio
async def test_non_2xx_raises(node, router):
    async with NamingClient("http://ns", transport=router) as client:
        with pytest.raises(NamingUnavailableError) as info:
            await client.register(make_entry(host=""))
    assert info.value.data["status"] == 400


@pytest.mark.asyncio
async def test_path_style_names_survive_the_url(router):
    node = NamingNode({"node_id": "ns", "delimiter": "/"})
    router.add("ns", node.app)
    async with NamingClient("http://ns", transport=router) as client:
        await client.register(make_entry(name="/org/service/db"))
        assert [e.name for e in await client.lookup("/org/service/db")] == ["/org/service/db"]
        assert [e.name for e in await client.resolve("/org/service/db/replica")] == ["/org/service/db"]
