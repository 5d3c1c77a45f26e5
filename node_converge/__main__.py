"""Run the node-converge command line tool."""

from node_converge.tool.node_converge import main

main()
