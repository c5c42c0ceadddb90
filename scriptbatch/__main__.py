from scriptbatch.cli import main

main()
