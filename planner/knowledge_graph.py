"""
Knowledge Graph — NetworkX MultiDiGraph of the network and its assigned lanes.

Regions, suppliers, assembly sites and distribution centers are typed nodes
with IN_REGION membership edges. When a configuration is given, each product
adds two lane edges keyed by product id: SUPPLIES (supplier → assembly site)
and DELIVERS_TO (assembly site → DC), each carrying the leg's mode and
distance. Several products can share a site pair, hence the multigraph.

Enables topology queries that the evaluator does not answer directly:
  - Lanes of a product (what the network view draws)
  - Impact analysis: "Which products lose their route if site X fails?"
  - Site exposure: upstream feeders and downstream destinations of a site
  - Supply diversity: suppliers in use per region

Node IDs use type prefixes (supplier:, assembly:, dc:, region:).
"""

from typing import Optional

import networkx as nx

from planner.network import NetworkModel
from planner.scenario import Configuration


def _node(kind: str, node_id: str) -> str:
    return f"{kind}:{node_id}"


def _strip(node: str) -> str:
    return node.split(":", 1)[1]


class SupplyChainGraph:
    """NetworkX view of a NetworkModel, optionally with a configuration's lanes."""

    def __init__(self, network: NetworkModel, configuration: Optional[Configuration] = None):
        self._network = network
        self.graph = nx.MultiDiGraph()
        self._build()
        if configuration:
            network.require_valid(configuration, require_complete=False)
            self._add_lanes(configuration)

    def _build(self):
        g = self.graph
        net = self._network

        for r in net.regions:
            g.add_node(_node("region", r.region_id), node_type="region",
                       name=r.name, risk=r.risk, carbon=r.carbon)

        for s in net.suppliers:
            g.add_node(_node("supplier", s.supplier_id), node_type="supplier",
                       name=s.name, region_id=s.region_id, capacity=s.capacity,
                       reliability=s.reliability)
            g.add_edge(_node("supplier", s.supplier_id), _node("region", s.region_id),
                       edge_type="IN_REGION")

        for a in net.assembly_sites:
            g.add_node(_node("assembly", a.assembly_id), node_type="assembly",
                       name=a.name, region_id=a.region_id, capacity=a.capacity)
            g.add_edge(_node("assembly", a.assembly_id), _node("region", a.region_id),
                       edge_type="IN_REGION")

        for d in net.distribution_centers:
            g.add_node(_node("dc", d.dc_id), node_type="dc",
                       name=d.name, region_id=d.region_id)
            g.add_edge(_node("dc", d.dc_id), _node("region", d.region_id),
                       edge_type="IN_REGION")

    def _add_lanes(self, configuration: Configuration):
        net = self._network
        for product_id, a in configuration.items():
            sup = net.supplier(a.supplier_id)
            asm = net.assembly_site(a.assembly_id)
            dc = net.distribution_center(a.dc_id)
            self.graph.add_edge(
                _node("supplier", a.supplier_id), _node("assembly", a.assembly_id),
                key=product_id, edge_type="SUPPLIES", product_id=product_id,
                leg="supplier", mode=a.supplier_mode,
                distance=net.distance(sup.region_id, asm.region_id),
            )
            self.graph.add_edge(
                _node("assembly", a.assembly_id), _node("dc", a.dc_id),
                key=product_id, edge_type="DELIVERS_TO", product_id=product_id,
                leg="dc", mode=a.dc_mode,
                distance=net.distance(asm.region_id, dc.region_id),
            )

    # ═══════════════════════════════════════════════════════════════════════
    # QUERY METHODS
    # ═══════════════════════════════════════════════════════════════════════

    def get_nodes_by_type(self, node_type: str) -> list[str]:
        """Return node IDs of the given type (supplier, assembly, dc, region)."""
        return [n for n, d in self.graph.nodes(data=True)
                if d.get("node_type") == node_type]

    def _lane_edges(self):
        for u, v, attrs in self.graph.edges(data=True):
            if attrs.get("edge_type") in ("SUPPLIES", "DELIVERS_TO"):
                yield u, v, attrs

    def lanes(self, product_id: Optional[str] = None) -> list[dict]:
        """Assigned lanes, optionally for one product: {product_id, from, to, leg, mode, distance}."""
        return [
            {
                "product_id": attrs["product_id"],
                "from": _strip(u),
                "to": _strip(v),
                "leg": attrs["leg"],
                "mode": attrs["mode"],
                "distance": attrs["distance"],
            }
            for u, v, attrs in self._lane_edges()
            if product_id is None or attrs["product_id"] == product_id
        ]

    def impact_analysis(self, kind: str, site_id: str) -> list[str]:
        """Which products lose their route if this site is disabled?

        Each product has exactly one route, so this is every product with a
        lane touching the site. Unknown sites return an empty list.
        """
        node = _node(kind, site_id)
        if node not in self.graph:
            return []
        affected = set()
        for _, _, attrs in self.graph.in_edges(node, data=True):
            if "product_id" in attrs:
                affected.add(attrs["product_id"])
        for _, _, attrs in self.graph.out_edges(node, data=True):
            if "product_id" in attrs:
                affected.add(attrs["product_id"])
        return sorted(affected)

    def site_exposure(self, kind: str, site_id: str) -> dict:
        """Upstream feeders and downstream destinations of a site via assigned lanes."""
        node = _node(kind, site_id)
        if node not in self.graph:
            return {"site_id": site_id, "upstream": [], "downstream": [],
                    "upstream_count": 0, "downstream_count": 0}
        upstream = sorted({
            _strip(u) for u, _, attrs in self.graph.in_edges(node, data=True)
            if "product_id" in attrs
        })
        downstream = sorted({
            _strip(v) for _, v, attrs in self.graph.out_edges(node, data=True)
            if "product_id" in attrs
        })
        return {
            "site_id": site_id,
            "upstream": upstream,
            "downstream": downstream,
            "upstream_count": len(upstream),
            "downstream_count": len(downstream),
        }

    def supply_diversity(self) -> dict[str, int]:
        """Suppliers with at least one assigned lane, counted per region."""
        by_region: dict[str, set] = {}
        for u, _, attrs in self._lane_edges():
            if attrs["edge_type"] != "SUPPLIES":
                continue
            region = self.graph.nodes[u].get("region_id", "unknown")
            by_region.setdefault(region, set()).add(u)
        return {region: len(nodes) for region, nodes in by_region.items()}
