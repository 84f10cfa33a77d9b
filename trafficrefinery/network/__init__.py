"""Packet decoding, interfaces, direction detection, capture loops and pcap traces."""