"""Assignment domain - fairness queue, rounds and the assignment engine"""
