"""
Resolve org.example.calc through a naming node and call it through a proxy.

Start a naming node (example/naming_node.py) and the calculator service
(python -m rpcnaming.main) first.
"""

import asyncio

from rpcnaming.client.rpc_client import RPCClient
from rpcnaming.errors import NamingRPCError


async def main():
    async with RPCClient("http://127.0.0.1:5000") as client:
        try:
            calc = await client.connect("org.example.calc")
        except NamingRPCError as e:
            print(f"Error: {e}")
            return

        async with calc:
            print("2+3 =", await calc.add(2, 3))
            print("4*5 =", await calc.mul(4, 5))
            print("Echo:", await calc.echo("Hola mundo!"))

            try:
                await calc.divide(1, 0)
            except NamingRPCError as e:
                print(f"Error: {e}")


if __name__ == "__main__":
    asyncio.run(main())
