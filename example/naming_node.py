"""
A single naming node configured from the environment (or a .env file):

    NAMING_NODE_ID=ns1 NAMING_PORT=5001 NAMING_DELEGATES=http://127.0.0.1:5002 \
        python example/naming_node.py
"""

from rpcnaming.naming.node import NamingNode

if __name__ == "__main__":
    NamingNode().run()
