"""
Write a synthetic NetworkData JSON file with planted gather and scatter patterns.

Usage: python generate_test_data.py [output.json]
"""

import json
import random
import sys

nodes = []
edges = []
edge_id = 1


def add_node(node_id, label, node_type, **data):
    nodes.append({"id": node_id, "label": label, "type": node_type, "data": data})


def add_tx(source, target, amount, edge_type="p2p", is_fraud=False):
    global edge_id
    edges.append({
        "id": f"TX_{edge_id:05d}",
        "source": source,
        "target": target,
        "label": f"${amount:,.2f}",
        "amount": round(amount, 2),
        "weight": round(min(10.0, 5.0 + amount / 500.0), 2),
        "type": edge_type,
        "isFraud": is_fraud,
    })
    edge_id += 1


# Accounts and merchants
for i in range(1, 101):
    add_node(f"user-{i}", f"User {i}", "user",
             value=random.randint(60, 99), accountAge=random.randint(30, 2000))
for i in range(1, 21):
    add_node(f"merchant-{i}", f"Merchant {i}", "merchant",
             value=random.randint(70, 99), status="verified")
add_node("mule-collector", "Collector Account", "user", value=4, accountAge=3)
add_node("mule-distributor", "Distributor Account", "user", value=6, accountAge=2)

# 1. Gather: many users feeding one collector
for i in range(1, 13):
    add_tx(f"user-{i}", "mule-collector", random.uniform(400, 1200), is_fraud=True)

# 2. Scatter: the distributor spreading funds out
for i in range(20, 30):
    add_tx("mule-distributor", f"user-{i}", random.uniform(300, 900), is_fraud=True)

# 3. Collector hands the pool to the distributor
add_tx("mule-collector", "mule-distributor", 9000, is_fraud=True)

# 4. Legitimate purchases
for _ in range(300):
    add_tx(f"user-{random.randint(1, 100)}", f"merchant-{random.randint(1, 20)}",
           random.uniform(5, 500), edge_type="transaction")

# 5. Legitimate peer-to-peer noise
for _ in range(150):
    source, target = random.sample(range(1, 101), 2)
    add_tx(f"user-{source}", f"user-{target}", random.uniform(10, 300))

path = sys.argv[1] if len(sys.argv) > 1 else "sample_network.json"
with open(path, "w") as f:
    json.dump({"nodes": nodes, "edges": edges}, f, indent=2)
print(f"Created {path} with {len(nodes)} nodes and {len(edges)} edges.")
