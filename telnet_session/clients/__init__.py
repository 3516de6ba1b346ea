"""Protocol clients for telnet session tools."""
