"""
Three naming nodes chained by delegation, for local experiments:

    root (5000) -> ns1 (5001) -> ns2 (5002)

Register anywhere with POST /register, then resolve through the root:

    curl -X POST localhost:5002/register -H 'content-type: application/json' \
         -d '{"name": "org.service.db", "host": "10.0.0.5", "port": 5432, "kind": "service"}'
    curl 'localhost:5000/resolve?name=org.service.db'

Run:    python example/naming_cluster.py
"""

import anyio

from rpcnaming.naming.node import NamingNode, NodeSettings

NODES = [
    NodeSettings(node_id="root", port=5000, delegates=("http://127.0.0.1:5001",)),
    NodeSettings(node_id="ns1", port=5001, delegates=("http://127.0.0.1:5002",)),
    NodeSettings(node_id="ns2", port=5002, delegates=()),
]


async def main():
    async with anyio.create_task_group() as tg:
        for settings in NODES:
            tg.start_soon(NamingNode(settings).serve)


if __name__ == "__main__":
    anyio.run(main)
