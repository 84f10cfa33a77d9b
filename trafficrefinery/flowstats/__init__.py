"""Flow records with their counters, and symmetric 4-tuple flow hashing."""