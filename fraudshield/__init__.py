"""FraudShield: transaction fraud scoring service."""
