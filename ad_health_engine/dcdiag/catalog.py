"""
Human-readable explanations for dcdiag sub-tests, shown next to each outcome
in the report.
"""

from __future__ import annotations

GENERIC_EXPLANATION = "Domain controller diagnostic test. See 'dcdiag /?' for details."

TEST_EXPLANATIONS = {
    "Advertising": "Checks that the DC advertises itself and its roles (DC, GC, KDC, time server) to clients.",
    "CheckSDRefDom": "Checks security descriptors on application directory partition cross-references.",
    "CheckSecurityError": "Looks for security-related errors that may block replication or logon.",
    "Connectivity": "Checks DNS registration and that LDAP and RPC are reachable on the DC.",
    "CrossRefValidation": "Validates cross-references of naming contexts.",
    "CutoffServers": "Checks for servers that are not receiving replication because partners are down.",
    "DcPromo": "Tests the DNS infrastructure against requirements for promoting a DC.",
    "DFSREvent": "Reports DFS Replication errors and warnings logged in the last 24 hours (SYSVOL).",
    "DNS": "Runs the DNS health tests (delegations, dynamic updates, records, forwarders).",
    "FrsEvent": "Reports File Replication Service errors logged in the last 24 hours (legacy SYSVOL).",
    "Intersite": "Checks for failures that would prevent or delay intersite replication.",
    "KccEvent": "Checks that the Knowledge Consistency Checker completes without errors.",
    "KnowsOfRoleHolders": "Checks that the DC can contact the holders of all five FSMO roles.",
    "LocatorCheck": "Checks that global role holders (GC, PDC, time server, KDC) can be located.",
    "MachineAccount": "Checks that the DC computer account is registered and its SPNs are correct.",
    "NCSecDesc": "Checks naming-context security descriptors grant replication permissions.",
    "NetLogons": "Checks that logon privileges needed for replication are granted.",
    "ObjectsReplicated": "Checks that the machine account and DSA objects have replicated.",
    "OutboundSecureChannels": "Checks that secure channels exist to all DCs in trusted domains.",
    "RegisterInDNS": "Checks whether the DC can register its locator records in DNS.",
    "Replications": "Checks for timely replication between this DC and its partners.",
    "RidManager": "Checks that the RID master is reachable and the DC has a usable RID pool.",
    "Services": "Checks that required AD DS dependent services are running.",
    "SystemLog": "Reports errors in the System event log from the last 60 minutes.",
    "Topology": "Checks that the generated replication topology is fully connected.",
    "SysVolCheck": "Checks that the SYSVOL share is ready and shared.",
    "VerifyEnterpriseReferences": "Verifies system references required by FRS and replication across the enterprise.",
    "VerifyReferences": "Verifies system references required by FRS and replication on this DC.",
    "VerifyReplicas": "Checks that application directory partitions are instantiated on their replicas.",
}

_BY_KEY = {name.casefold(): text for name, text in TEST_EXPLANATIONS.items()}


def explain(test_name: str) -> str:
    """Explanation for a sub-test, or a generic one for unknown names."""
    return _BY_KEY.get(test_name.casefold(), GENERIC_EXPLANATION)
