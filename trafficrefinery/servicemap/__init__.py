"""Mapping of IP addresses to services through DNS responses, regexes and prefixes."""